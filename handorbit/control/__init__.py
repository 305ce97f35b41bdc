"""Control-state integration (producer side) and the viewer rig (consumer side)."""
