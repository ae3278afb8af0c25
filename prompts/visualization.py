"""
Prompts for generating and refining a chart configuration.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from dto.dataset import Row

DEFAULT_USER_PROMPT = "Visualize this data effectively"

# Rows of the dataset shown to the model.
SAMPLE_ROWS = 3


def get_generation_prompt(
    user_prompt: str,
    columns: List[str],
    data_sample: List[Row],
) -> str:
    """
    Build the text part of a full-generation request.  A reference
    image, when there is one, travels alongside as a separate part.
    """
    return f"""You are an expert Data Visualization Engineer.

Task:
1. Analyze the provided dataset structure (columns and sample data).
2. If an image is provided, analyze the chart style, type, and aesthetics (color, layout) from the image.
3. Generate a configuration to recreate a similar visualization using the provided dataset.
4. If no image is provided, suggest the best chart type based on the data and user prompt.
5. Also generate R (ggplot2) and Python (matplotlib/seaborn) code snippets to reproduce this chart.

User Prompt: {user_prompt}
Data Columns: {json.dumps(columns)}
Data Sample (First {SAMPLE_ROWS} rows): {json.dumps(data_sample[:SAMPLE_ROWS], default=str)}
"""


def get_refinement_prompt(current_config: Dict[str, Any], user_prompt: str) -> str:
    return f"""Current Configuration: {json.dumps(current_config)}
User Update Request: "{user_prompt}"

Update the visualization configuration based on the user's request.
You can change the chart type, axis keys, titles, or colors.
Regenerate the R and Python code to reflect these changes.
"""
