# Supabase tables: aquariums, aquarium_photos
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

aquariums:
- id: uuid (primary key)
- name: text (not null)
- type: text (not null) - reef | saltwater | freshwater
- volume: numeric (not null, check volume > 0) - gallons
- description: text (nullable)
- user_id: uuid (foreign key to users.id, not null) - owner
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

aquarium_photos:
- id: uuid (primary key)
- aquarium_id: uuid (foreign key to aquariums.id ON DELETE CASCADE, not null)
- image_key: text (not null) - S3 object key
- created_at: timestamp (default: now())

equipment and corals also reference aquariums.id with ON DELETE CASCADE, so
deleting an aquarium removes its rows; the blobs behind them are cleaned up
by the API.
"""
