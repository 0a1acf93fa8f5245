from .contact import Contact, ContactCreate, ContactSearchQuery, ContactStatus, EmailStatus
from .profile import Profile, Role, NotificationPreferences
from .chat import ChatMessage, Sender
from .plan import Plan
