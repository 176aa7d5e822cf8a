"""
dreamer_watch.services

Chat-turn services: submission decoding and the workflow run that loads,
extends and saves a chat around one pass of the graph.
"""
