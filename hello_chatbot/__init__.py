# hello_chatbot/__init__.py
"""
Hello Chatbot: a website chat assistant relaying questions to a knowledge-base API.
"""

__version__ = "0.1.0"
