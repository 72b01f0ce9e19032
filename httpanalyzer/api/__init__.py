"""
HTTP Analyzer API

REST routes, WebSocket command channel and the shared command dispatcher.
"""
