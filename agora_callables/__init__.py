"""Agora callables: chat/RTC token issuance and chat account provisioning.

To use the Flask app:
    from agora_callables.flask_app import create_app

To call handlers directly:
    from agora_callables.core import CallableContext, issue_chat_token, build_services
"""
# Note: flask_app is not imported by default so core can be used without
# loading settings from the environment.
