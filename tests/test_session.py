import io
import json
import threading

import pytest
from PIL import Image

from conftest import FakeAIService, make_payload
from dto.state import ActiveTab, RequestStatus
from errors import DataParseError
from session import GENERATION_FAILED_MESSAGE, VizSession
from state.actions import GenerationStarted
from utils.code_view import PYTHON_PLACEHOLDER, R_PLACEHOLDER


def _png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), "white").save(buf, format="PNG")
    return buf.getvalue()


PNG_BYTES = _png_bytes()


@pytest.fixture
def session(fake_service):
    s = VizSession(service_factory=lambda: fake_service)
    s.start()
    return s


class TestUpload:

    def test_start_loads_example(self, session):
        assert session.state.dataset.name == "Titanic Dataset"
        assert session.state.config is None

    def test_reupload_clears_config(self, session, tmp_path):
        session.generate()
        assert session.state.config is not None

        path = tmp_path / "new.csv"
        path.write_text("Category,Amount\nA,1\nB,2\n", encoding="utf-8")
        session.upload_csv(path)
        assert session.state.dataset.name == "new.csv"
        assert session.state.config is None

    def test_bad_csv_leaves_state_unchanged(self, session, tmp_path):
        session.generate()
        before = session.state
        path = tmp_path / "bad.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(DataParseError):
            session.upload_csv(path)
        assert session.state is before

    def test_upload_image(self, session, tmp_path):
        path = tmp_path / "ref.png"
        path.write_bytes(PNG_BYTES)
        session.upload_image(path)
        assert session.state.image_preview.startswith("data:image/png;base64,")
        session.clear_image()
        assert session.state.image_preview is None


class TestGenerate:

    def test_first_generation(self, session, fake_service):
        assert session.generate() is True
        assert session.state.config.title == "Fare by class"
        assert session.state.status == RequestStatus.IDLE
        call = fake_service.calls[0]
        assert call["kind"] == "text"
        assert "Visualize this data effectively" in call["prompt"]

    def test_prompt_with_existing_config_refines(self, session, fake_service):
        session.generate()
        session.set_prompt("make it a pie")
        session.generate()
        assert len(fake_service.calls) == 2
        assert "Current Configuration:" in fake_service.calls[1]["prompt"]

    def test_image_forces_full_generation(self, session, fake_service, tmp_path):
        session.generate()
        path = tmp_path / "ref.png"
        path.write_bytes(PNG_BYTES)
        session.upload_image(path)
        session.set_prompt("like this")
        session.generate()
        call = fake_service.calls[1]
        assert call["kind"] == "media"
        assert call["image_bytes"] == PNG_BYTES
        assert call["mime_type"] == "image/png"

    def test_no_prompt_with_existing_config_regenerates(self, session, fake_service):
        session.generate()
        session.generate()
        assert "Current Configuration:" not in fake_service.calls[1]["prompt"]

    def test_failure_keeps_config_and_clears_loading(self, session, fake_service):
        session.generate()
        fake_service.error = ConnectionError("offline")
        session.set_prompt("change it")
        assert session.generate() is False
        state = session.state
        assert state.config.title == "Fare by class"
        assert not state.loading
        assert state.error_message == GENERATION_FAILED_MESSAGE

    def test_malformed_response_is_a_failure(self, session, fake_service):
        fake_service.response = json.dumps({"chartType": "bar"})
        assert session.generate() is False
        assert session.state.config is None
        assert session.state.error_message == GENERATION_FAILED_MESSAGE

    def test_request_in_flight_is_ignored(self, session, fake_service):
        session.store.dispatch(GenerationStarted())
        assert session.generate() is False
        assert fake_service.calls == []
        assert session.state.loading

    def test_concurrent_generate_issues_one_request(self, fake_service):
        entered = threading.Event()
        release = threading.Event()

        class SlowService(FakeAIService):
            def get_decision(self, prompt, response_schema=None):
                entered.set()
                release.wait(timeout=5)
                return super().get_decision(prompt, response_schema)

        slow = SlowService()
        s = VizSession(service_factory=lambda: slow)
        s.start()

        results = []
        worker = threading.Thread(target=lambda: results.append(s.generate()))
        worker.start()
        assert entered.wait(timeout=5)
        assert s.generate() is False
        release.set()
        worker.join(timeout=5)

        assert results == [True]
        assert len(slow.calls) == 1

    def test_dataset_replaced_during_request(self, tmp_path):
        csv_path = tmp_path / "other.csv"
        csv_path.write_text("x,y\n1,2\n", encoding="utf-8")
        holder = {}

        class ReloadingService(FakeAIService):
            def get_decision(self, prompt, response_schema=None):
                holder["session"].upload_csv(csv_path)
                return super().get_decision(prompt, response_schema)

        service = ReloadingService()
        s = VizSession(service_factory=lambda: service)
        holder["session"] = s
        s.start()

        assert s.generate() is False
        assert s.state.config is None
        assert s.state.dataset.name == "other.csv"
        assert not s.state.loading

    def test_without_dataset_nothing_happens(self, fake_service):
        s = VizSession(service_factory=lambda: fake_service)
        assert s.generate() is False
        assert fake_service.calls == []

    def test_history_records_both_sides(self, session):
        session.set_prompt("fares please")
        session.generate()
        roles = [m.role for m in session.state.history]
        assert roles == ["user", "model"]


class TestOutput:

    def test_panels_before_generation(self, session):
        assert session.panel_text(ActiveTab.R) == R_PLACEHOLDER
        assert session.panel_text("python") == PYTHON_PLACEHOLDER
        assert session.chart_plan() is None

    def test_panels_after_generation(self, session):
        session.generate()
        session.select_tab("r")
        assert session.panel_text() == make_payload()["rCode"]
        assert session.panel_text(ActiveTab.PYTHON) == make_payload()["pythonCode"]
        assert "Fare by class" in session.panel_text(ActiveTab.CHART)

    def test_chart_plan_follows_config(self, session):
        session.generate()
        plan = session.chart_plan()
        assert plan.kind == "bar"
        assert len(plan.data) == 6

    def test_render_without_config(self, session, tmp_path):
        assert session.render_chart(tmp_path / "c.png") is None

    def test_render_png(self, session, tmp_path):
        session.generate()
        out = session.render_chart(tmp_path / "c.png")
        assert out.exists() and out.stat().st_size > 0
