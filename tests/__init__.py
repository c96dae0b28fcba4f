"""
Test suite for the Clinic Rotation Service.

Contains unit and integration tests for the rotation scheduler and its API.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
