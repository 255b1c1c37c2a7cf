# Infrastructure Layer
# ====================
# External services and storage:
# - persistence/: SQLite collection store
# - llm/: Gemini reputation summaries
# - config/: Environment and settings management
