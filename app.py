"""
FractureLab - fracture detection review and annotation

Run with: streamlit run app.py
"""
from fracturelab.main import main

main()
