"""Terminal user interface: key handling, input and rendering."""
