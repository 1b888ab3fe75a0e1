"""
Editor Canvas - Streamlit component bridge for the bounding-box editor

The frontend shows the composited scene and reports raw pointer, wheel and
key events back as a batch; geometry decisions stay in EditorController.
"""
import os
from typing import Any, Dict, List, Optional, Tuple

import streamlit.components.v1 as components

from fracturelab import config
from fracturelab.services.images import image_to_base64
from .controller import EditorController

# Declare the custom component
_RELEASE = config.EDITOR_CANVAS_RELEASE_MODE

if not _RELEASE:
    _editor_canvas = components.declare_component(
        "editor_canvas",
        url="http://localhost:5175",  # Vite dev server
    )
else:
    parent_dir = os.path.dirname(os.path.abspath(__file__))
    build_dir = os.path.join(parent_dir, "../../../frontend/editor_canvas/build")
    _editor_canvas = components.declare_component(
        "editor_canvas",
        path=build_dir
    )


def editor_canvas(controller: EditorController, key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Display the editor canvas

    Args:
        controller: Editor whose scene is rendered
        key: Streamlit component key

    Returns:
        Dict with the event batch reported by the frontend:
        - events: List of event dicts (pointerdown/pointermove/pointerup/wheel/keydown)
        - batchId: Identifier of the batch, used to skip already-processed batches
        None while the image is loading.
    """
    scene = controller.render()
    if scene is None:
        return None

    return _editor_canvas(
        imageUrl=image_to_base64(scene),
        width=scene.width,
        height=scene.height,
        state=controller.store.to_dict(),
        key=key,
        default=None,
    )


def parse_canvas_result(result: Optional[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """
    Parse the result from editor_canvas

    Returns:
        Tuple of (events, batch_id)
    """
    if not result:
        return [], None
    events = [e for e in result.get("events", []) if isinstance(e, dict)]
    return events, result.get("batchId")
