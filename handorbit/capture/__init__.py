"""Frame sources: live camera and JSON-lines replay."""
