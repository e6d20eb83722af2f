# =============================================================================
# Email Templates
# =============================================================================
#
# Placeholders: {name}, {app_name}, {action_url}, {expires_hours}
# Values are HTML-escaped by the sender before formatting.
#
# =============================================================================

_BASE_STYLE = (
    "font-family: Arial, sans-serif; line-height: 1.6; color: #333; "
    "max-width: 600px; margin: 0 auto; padding: 20px;"
)

_BUTTON_STYLE = (
    "display: inline-block; padding: 12px 24px; color: white; "
    "text-decoration: none; border-radius: 4px; margin: 20px 0; background-color: {color};"
)

TEMPLATES = {
    "verify_email": {
        "subject": "Verify Your Email Address",
        "path": "/api/v1/auth/verify-email",
        "html": """
        <html>
        <body style="{base_style}">
            <h1>Welcome to {app_name}!</h1>
            <h2>Hi {name},</h2>
            <p>Thank you for registering. To complete your registration, please verify your email address by clicking the button below:</p>
            <p><a href="{action_url}" style="{button_style}">Verify My Email</a></p>
            <p>If the button doesn't work, copy and paste this link into your browser:</p>
            <p><a href="{action_url}">{action_url}</a></p>
            <p>This verification link will expire in {expires_hours} hours.</p>
            <p>If you didn't create an account with us, please ignore this email.</p>
        </body>
        </html>
        """,
        "button_color": "#4CAF50",
    },

    "password_reset": {
        "subject": "Reset Your Password",
        "path": "/api/v1/auth/reset-password",
        "html": """
        <html>
        <body style="{base_style}">
            <h1>Password Reset Request</h1>
            <h2>Hi {name},</h2>
            <p>We received a request to reset the password for your {app_name} account. Click the button below to choose a new one:</p>
            <p><a href="{action_url}" style="{button_style}">Reset My Password</a></p>
            <p>If the button doesn't work, copy and paste this link into your browser:</p>
            <p><a href="{action_url}">{action_url}</a></p>
            <p>This link will expire in {expires_hours} hours.</p>
            <p>If you didn't request a password reset, you can safely ignore this email. Your password will not change.</p>
        </body>
        </html>
        """,
        "button_color": "#FF6B6B",
    },
}


def render(template: str, **data: str) -> tuple[str, str]:
    """
    Render a template to (subject, html).

    Raises:
        KeyError: If the template does not exist
    """
    tpl = TEMPLATES[template]
    html = tpl["html"].format(
        base_style=_BASE_STYLE,
        button_style=_BUTTON_STYLE.format(color=tpl["button_color"]),
        **data,
    )
    return tpl["subject"], html
