"""
Hash Run Email Gateway.

Turns inbound emails about hash runs into published run records:
- Authorizes the sender against a shared secret and allow-list
- Routes by subject (help, export, import, run update)
- Extracts run details with an AI completion service
- Creates or updates runs by run number and replies with the outcome
"""

__version__ = "1.0.0"
