"""Analysis modules: orchestration, collaborators and reporting."""
