from .event_model import Event
from .event_slot_model import EventSlot
from .template_model import Template
from .template_role_model import TemplateRole

__all__ = ["Event", "EventSlot", "Template", "TemplateRole"]
