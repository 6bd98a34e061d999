"""Kanban board over Dataverse records."""
