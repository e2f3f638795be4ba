# Supabase table: equipment
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- type: text (not null) - e.g. "lighting", "filtration", "pump", "heater"
- brand: text (nullable)
- notes: text (nullable)
- aquarium_id: uuid (foreign key to aquariums.id ON DELETE CASCADE, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
