"""
Agent login management: temporary passwords and account provisioning
"""
from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
import logging
import secrets
import string

from backend.core.models import User

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits + '!@#$%'
TEMP_PASSWORD_LENGTH = 12


def generate_temp_password(length=TEMP_PASSWORD_LENGTH):
    return ''.join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


@transaction.atomic
def set_agent_password(agent, password=None):
    """
    Give the agent a login with `password` (generated when omitted).
    Creates and links the user account on first use. The password counts as
    temporary until the agent changes it. Returns (user, password, created).
    """
    password = password or generate_temp_password()
    user = agent.user
    created = False

    if user is None:
        user = User.objects.filter(email__iexact=agent.email).first()
    if user is None:
        user = User.objects.create_user(
            email=agent.email,
            password=password,
            name=agent.full_name,
            phone=agent.phone,
            role=User.ROLE_AGENT,
        )
        created = True
    else:
        user.set_password(password)

    user.password_changed_at = None
    user.is_active = agent.status == agent.STATUS_ACTIVE
    user.save()

    if agent.user_id != user.id:
        agent.user = user
        agent.save(update_fields=['user', 'updated_at'])

    logger.info(f"Password {'issued' if created else 'reset'} for agent {agent.agent_code}")
    return user, password, created


def email_agent_password(agent, password):
    """Send the temporary password to the agent; returns True when sent"""
    subject = 'Your DressSync login'
    message = (
        f"Hello {agent.first_name},\n\n"
        f"Your DressSync account is ready.\n\n"
        f"Email: {agent.email}\n"
        f"Temporary password: {password}\n\n"
        f"Please sign in at {settings.FRONTEND_URL} and change your password.\n"
    )
    sent = send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, [agent.email])
    logger.info(f"Password email to {agent.email}: {'sent' if sent else 'not sent'}")
    return bool(sent)
