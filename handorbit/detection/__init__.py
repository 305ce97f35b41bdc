"""Hand landmark geometry and the MediaPipe detector adapter."""
