# CrowdScore - Crowdfunding Delivery Reputation
# =============================================
# Backers report how late crowdfunding projects delivered, site admins
# moderate the reports, company admins reply to them.
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI pages and JSON endpoints (web/)
# - Application:    State controller, seed data, passwords (application/)
# - Domain:         Models, aggregation, duplicate detection, merge (domain/)
# - Infrastructure: SQLite store, Gemini client, settings (infrastructure/)
