"""
Image loading helpers for remote images and data URLs
"""
import base64
import binascii
from io import BytesIO

import requests
from PIL import Image, UnidentifiedImageError

from fracturelab import config


def image_to_base64(image: Image.Image) -> str:
    """
    Convert PIL Image to base64 string

    Args:
        image: PIL Image object

    Returns:
        Base64-encoded data URL string
    """
    buffered = BytesIO()
    image.save(buffered, format="PNG")
    img_str = base64.b64encode(buffered.getvalue()).decode()
    return f"data:image/png;base64,{img_str}"


def load_image(reference: str, timeout: float = config.INFERENCE_TIMEOUT) -> Image.Image:
    """
    Load an image from a data URL, an http(s) URL or a local path

    Args:
        reference: data:image/...;base64,... string, URL or file path
        timeout: HTTP timeout in seconds

    Returns:
        Fully loaded PIL Image

    Raises:
        ValueError: If the reference cannot be decoded as an image
        requests.RequestException: If the download fails
    """
    if not reference:
        raise ValueError("Empty image reference")

    if reference.startswith("data:"):
        try:
            _, encoded = reference.split(",", 1)
            source = BytesIO(base64.b64decode(encoded))
        except (ValueError, binascii.Error) as e:
            raise ValueError(f"Invalid data URL: {e}") from e
    elif reference.startswith(("http://", "https://")):
        response = requests.get(reference, timeout=timeout)
        response.raise_for_status()
        source = BytesIO(response.content)
    else:
        source = reference

    try:
        image = Image.open(source)
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Could not decode image: {e}") from e
    return image
