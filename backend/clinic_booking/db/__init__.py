# Database package: engine/session management, ORM models and seed data
