# helpdesk/notification/messages.py
"""Email bodies for lifecycle and ticket events."""

from html import escape

from helpdesk.notification.dispatcher import OutgoingEmail

LOGIN_HINT = "Please log in to the help desk system to view and respond."


def _label(value) -> str:
    return str(getattr(value, "value", value)).replace("_", " ")


def _compose(to: str, subject: str, heading: str, lines: list[str], body: str | None = None) -> OutgoingEmail:
    html_parts = [f"<h2>{escape(heading)}</h2>"]
    html_parts += [f"<p>{escape(line)}</p>" for line in lines]
    text_parts = [heading, ""] + lines
    if body is not None:
        html_parts.append("<p>" + escape(body).replace("\n", "<br>") + "</p>")
        text_parts += ["", body]
    html_parts.append(f"<p>{LOGIN_HINT}</p>")
    text_parts += ["", LOGIN_HINT]
    return OutgoingEmail(to=to, subject=subject, html="\n".join(html_parts), text="\n".join(text_parts))


def email_verification(to: str, code: str, ttl_hours: int, temp_password: str | None = None) -> OutgoingEmail:
    html = [
        "<h2>Welcome to TicketForge!</h2>",
        "<p>Thank you for registering! Please verify your email address to complete your registration.</p>",
        "<h3>Email Verification Code:</h3>",
        f"<p style=\"font-size: 24px; font-weight: bold; font-family: monospace;\">{escape(code)}</p>",
        f"<p>This code will expire in {ttl_hours} hours.</p>",
    ]
    text = [
        "Welcome to TicketForge!",
        "",
        f"Your email verification code is: {code}",
        f"This code will expire in {ttl_hours} hours.",
    ]
    if temp_password:
        html += [
            "<hr>",
            "<h3>Temporary Password:</h3>",
            f"<p style=\"font-family: monospace;\">{escape(temp_password)}</p>",
            "<p><strong>Important:</strong> You will be asked to change this password after your first login.</p>",
        ]
        text += ["", f"Temporary password: {temp_password}", "You will be asked to change it after your first login."]
    html.append("<p>If you did not create this account, please ignore this email.</p>")
    text += ["", "If you did not create this account, please ignore this email."]
    return OutgoingEmail(to=to, subject="Verify Your Email Address", html="\n".join(html), text="\n".join(text))


def password_reset(to: str, code: str, ttl_minutes: int) -> OutgoingEmail:
    html = "\n".join([
        "<h2>Password Reset Request</h2>",
        "<p>You have requested to reset your password.</p>",
        f"<p>Your password reset code is: <strong>{escape(code)}</strong></p>",
        f"<p>This code will expire in {ttl_minutes} minutes.</p>",
        "<p>If you did not request this password reset, please ignore this email.</p>",
    ])
    text = "\n".join([
        "Password Reset Request",
        "",
        f"Your password reset code is: {code}",
        f"This code will expire in {ttl_minutes} minutes.",
        "If you did not request this password reset, please ignore this email.",
    ])
    return OutgoingEmail(to=to, subject="Password Reset Request", html=html, text=text)


def new_ticket(to: str, ticket) -> OutgoingEmail:
    return _compose(
        to,
        f"New Ticket #{ticket.ticket_number}: {ticket.subject}",
        "New Support Ticket",
        [
            f"Ticket #{ticket.ticket_number}",
            f"Subject: {ticket.subject}",
            f"Priority: {_label(ticket.priority)}",
            f"Status: {_label(ticket.status)}",
        ],
        body=ticket.description,
    )


def new_comment(to: str, ticket, comment, author_name: str) -> OutgoingEmail:
    return _compose(
        to,
        f"New Comment on Ticket #{ticket.ticket_number}: {ticket.subject}",
        "New Comment",
        [f"Ticket #{ticket.ticket_number}: {ticket.subject}", f"From: {author_name}"],
        body=comment.content,
    )


def internal_comment(to: str, ticket, comment, author_name: str, author_role: str) -> OutgoingEmail:
    return _compose(
        to,
        f"Internal Note on Ticket #{ticket.ticket_number}: {ticket.subject}",
        "Internal Note (Staff Only)",
        [
            f"Ticket #{ticket.ticket_number}: {ticket.subject}",
            f"From: {author_name} ({author_role})",
            "This is an internal note - not visible to customers.",
        ],
        body=comment.content,
    )


def status_change(to: str, ticket, old_status, new_status) -> OutgoingEmail:
    return _compose(
        to,
        f"Ticket #{ticket.ticket_number} Status Updated: {_label(new_status)}",
        "Ticket Status Update",
        [
            f"Ticket #{ticket.ticket_number}: {ticket.subject}",
            f"Status changed from: {_label(old_status)} -> {_label(new_status)}",
        ],
    )


def assignment(to: str, ticket) -> OutgoingEmail:
    return _compose(
        to,
        f"You've been assigned to Ticket #{ticket.ticket_number}: {ticket.subject}",
        "New Ticket Assignment",
        [
            "You have been assigned to the following ticket:",
            f"Ticket #{ticket.ticket_number}: {ticket.subject}",
            f"Priority: {_label(ticket.priority)}",
            f"Status: {_label(ticket.status)}",
        ],
        body=ticket.description,
    )
