"""Textual integration for memval. Opt-in — requires textual.

bind() mirrors a container into a widget: usually a ``reactive`` attribute,
or any callable that updates the widget. Guards, NoMatches handling and
thread marshaling live here so the core stays framework-agnostic.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from memval._sentinel import UNDETERMINED
from memval.binding import Binding

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bindings of app's widgets during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(widget) -> bool:
    """Is the widget in a state where it can be updated?"""
    if not widget.is_mounted:
        return False
    app = widget.app
    return app.is_running and id(app) not in _paused_apps


def bind(widget, value, target, *, default=None) -> Binding:
    """Mirror value into widget until the returned Binding is unmounted.

    target is an attribute name on widget, or a callable taking the value.
    While the container is undetermined the widget receives ``default``.
    Call from on_mount and unmount the Binding in on_unmount:

        def on_mount(self):
            self._settings = mtx.bind(self, SETTINGS, "settings")

        def on_unmount(self):
            self._settings.unmount()
    """
    # The calling thread is taken as the app thread; bind from on_mount.
    _main = threading.get_ident()

    if callable(target):
        render = target
    else:
        def render(v):
            setattr(widget, target, v)

    def _guarded(v):
        if not is_safe(widget):
            return
        if threading.get_ident() != _main:
            widget.app.call_from_thread(_safe, v)
        else:
            _safe(v)

    def _safe(v):
        try:
            render(default if v is UNDETERMINED else v)
        except NoMatches:
            pass

    binding = Binding(value, _guarded).mount()
    if value.current is UNDETERMINED:
        # subscribe() skips undetermined values; show the placeholder now.
        _guarded(UNDETERMINED)
    return binding
