"""HTTP routers for the Learning Tracker service."""
