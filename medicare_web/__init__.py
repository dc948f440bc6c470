"""
MediCare+ Web Client

FastAPI application that plays the browser side of the MediCare+ hospital
system: it keeps the signed-in session, guards role-specific pages, polls
notifications and calls the remote MediCare+ REST backend.
"""

__version__ = "1.0.0"
