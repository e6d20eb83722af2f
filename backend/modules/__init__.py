"""
Portcullis feature modules.

- auth: registration, login, JWT tokens, email verification, password reset
- users: user records, the user store and admin user management
- email: outbound transactional email

Modules talk to each other through the Protocols in their interfaces.py.
"""
