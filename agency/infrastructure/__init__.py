"""Infrastructure: persistence backends and the template catalog."""
