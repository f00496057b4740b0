"""Backend-For-Frontend that relays a VRChat session to the browser."""

__version__ = "0.1.0"
