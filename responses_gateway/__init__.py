"""
Responses Gateway

Serves the Responses API on top of Chat Completions providers.
"""
