"""
Streamlit pages for FractureLab application
"""
from .login import render_login_page
from .label import render_label_page
from .inference import render_inference_page
from .gallery import render_gallery_page

__all__ = ["render_login_page", "render_label_page", "render_inference_page", "render_gallery_page"]
