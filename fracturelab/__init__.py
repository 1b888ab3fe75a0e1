"""
FractureLab Application Package

Contains the Streamlit application organized into:
- state.py: Session state management
- main.py: Main entry point with sidebar navigation
- pages/: Individual page modules
- services/: Editor, inference client and data gateway
"""


def __getattr__(name):
    """Lazy load the Streamlit entry point."""
    if name == "main":
        from fracturelab.main import main
        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["main"]
