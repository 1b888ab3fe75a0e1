"""
Services used by the FractureLab pages
"""
