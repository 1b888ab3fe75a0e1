"""
Application configuration settings for FractureLab UI and services
"""
import logging
import os
from pathlib import Path

# Project directories
# Support bundled mode via environment variable override
PROJECT_ROOT = Path(os.environ.get('FRACTURELAB_ROOT', Path(__file__).parent.parent))
DATA_DIR = PROJECT_ROOT / "data"
GATEWAY_DIR = Path(os.environ.get('FRACTURELAB_DATA_DIR', DATA_DIR / "gateway"))

# Logging
LOG_DIR = os.getenv('FRACTURELAB_LOG_DIR')  # None = console only
LOG_LEVEL = getattr(logging, os.getenv('FRACTURELAB_LOG_LEVEL', 'INFO').upper(), logging.INFO)

# Inference service
INFERENCE_API_ENDPOINT = os.getenv('INFERENCE_API_ENDPOINT', 'http://localhost:8000')
INFERENCE_TIMEOUT = float(os.getenv('INFERENCE_TIMEOUT', '120'))
INFERENCE_WORKERS = 2
DEFAULT_CONFIDENCE_THRESHOLD = 50  # percent, converted to [0, 1] on the wire
DEFAULT_MODEL_ID = 1

# Image browsing
RANDOM_IMAGE_COUNT = 6
IMAGES_PER_PAGE = 25
THUMBNAIL_WIDTH = 120

# Editor geometry
MIN_BOX_SIZE = 20  # canvas units, applies to both drawing and resizing
HANDLE_SIZE = 8  # transform handle hit radius in screen pixels
ZOOM_STEP = 1.1  # multiplicative zoom per wheel notch
MIN_SCALE = 0.05
MAX_SCALE = 40.0

# Editor Canvas Configuration
# Development mode connects to Vite dev server at http://localhost:5175
# Production mode loads pre-built component from frontend/editor_canvas/build/
EDITOR_CANVAS_RELEASE_MODE = os.getenv('EDITOR_CANVAS_RELEASE', 'false').lower() == 'true'
