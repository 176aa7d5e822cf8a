"""
dreamer_watch.api

HTTP surface: the app factory (`app.create_app`), FastAPI dependencies and
routers for chat streaming, chat history, advanced search and the model list.
"""
