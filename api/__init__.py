"""
API routers for the Juri legal assistant
"""
