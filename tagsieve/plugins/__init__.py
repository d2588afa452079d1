"""Built-in tagsieve plugins."""
