"""External collaborators: media sources, artwork lookups and the presence sink."""
