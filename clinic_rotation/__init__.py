"""
Clinic Rotation Service

A FastAPI-based service for fair doctor assignment at the clinic front desk:
a daily round-robin rotation over the eligible clinicians, shared safely
between concurrently working operators.
"""

__version__ = "1.0.0"
