from importlib import import_module

__all__ = ["register_blueprints"]


def register_blueprints(app) -> None:
    """Register project blueprints exactly once (idempotent)."""
    modules = [
        "clinic_console.blueprints.calendar.routes",
    ]

    for mod_name in modules:
        module = import_module(mod_name)
        bp = getattr(module, "bp", None)
        if bp is None:
            continue
        bp_name = getattr(bp, "name", None) or "bp"
        if bp_name in app.blueprints:
            continue
        app.register_blueprint(bp)
