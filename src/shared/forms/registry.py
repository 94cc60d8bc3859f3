"""Form-type registry: maps the ``formType`` tag to its descriptor."""

from typing import Dict, List, Optional

from src.shared.forms.descriptors import DESCRIPTORS
from src.shared.forms.models import FormDescriptor, UnknownFormTypeError

FORM_REGISTRY: Dict[str, FormDescriptor] = {d.form_type: d for d in DESCRIPTORS}

VALID_FORM_TYPES: List[str] = [d.form_type for d in DESCRIPTORS]


def get_form_descriptor(form_type: Optional[str]) -> FormDescriptor:
    """
    Look up the descriptor for a form type tag.

    Raises:
        UnknownFormTypeError if the tag is missing or not registered
    """
    if not isinstance(form_type, str) or form_type not in FORM_REGISTRY:
        raise UnknownFormTypeError(form_type)
    return FORM_REGISTRY[form_type]
