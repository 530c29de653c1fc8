"""SNS webhook server subpackage.

Contains the FastAPI endpoint server, the application builder and the example
command-line program that prints received notifications.
"""
