# Domain Layer
# ============
# Pure business logic, no I/O:
# - models: records and enums
# - reputation: company and project metrics, delay formatting
# - duplicates: grouping reports by normalized crowdfunding link
# - merge: consolidating a duplicate group
