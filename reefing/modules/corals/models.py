# Supabase table: corals
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- species: text (not null)
- placement: text (nullable) - e.g. "top", "middle", "sand bed"
- color: text (nullable)
- size: text (nullable)
- acquisition_date: date (nullable)
- source: text (nullable) - LFS, frag swap, online vendor
- notes: text (nullable)
- image_key: text (nullable) - S3 object key of the single coral photo
- aquarium_id: uuid (foreign key to aquariums.id ON DELETE CASCADE, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
