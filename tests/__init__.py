"""
Test suite for the MediCare+ Web Client.

The remote backend is replaced by an in-process fake, so no network is used.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
