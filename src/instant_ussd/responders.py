"""Default menus and menu registry loading."""

import importlib

from .config import Settings
from .dispatch import MenuEvent, MenuRegistry
from .models import UssdReply


def build_default_registry(settings: Settings) -> MenuRegistry:
    """Build a registry answering the home and exit menus from templates.

    Used when no application menus are configured, so a freshly started
    gateway still answers every request with a valid screen.

    Args:
        settings: Gateway settings including the message templates.

    Returns:
        A registry with the home and exit menus registered.
    """
    registry = MenuRegistry()

    def home(event: MenuEvent) -> UssdReply:
        content = settings.welcome_template.format(
            service_code=event.record.service_code or "",
            phone_number=event.record.phone_number or "",
        )
        return UssdReply(message=content, end=True)

    def exit_menu(event: MenuEvent) -> UssdReply:
        return UssdReply(message=settings.exit_message, end=True)

    registry.register(settings.home_menu_id, home)
    registry.register(settings.exit_menu_id, exit_menu)
    return registry


def load_registry(import_path: str) -> MenuRegistry:
    """Load a registry from a ``"package.module:attribute"`` path.

    The attribute may be a ``MenuRegistry`` or a zero-argument callable
    returning one.

    Raises:
        ValueError: If the path is malformed or does not point at a registry.
    """
    module_name, _, attribute = import_path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Menu registry path must look like 'module:attribute', got {import_path!r}")

    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attribute)
    except AttributeError as e:
        raise ValueError(f"Module {module_name!r} has no attribute {attribute!r}") from e

    registry = target() if callable(target) and not isinstance(target, MenuRegistry) else target
    if not isinstance(registry, MenuRegistry):
        raise ValueError(f"{import_path!r} is not a MenuRegistry")
    return registry
