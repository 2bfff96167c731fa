"""
HTTP routers for the gateway service.
"""
