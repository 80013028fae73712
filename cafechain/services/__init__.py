"""
Services Module

Business logic behind the routers. Integrations follow the hybrid
pattern: each has a Mock (development) and a Real (staging/production)
implementation picked by ENV_MODE.

Services:
    - menu_version: per-restaurant staleness counter
    - otp: email verification codes
    - accounts: signup, login, password reset
    - wallet: balance and ledger
    - restaurants: restaurants, menu items, ads
    - orders: placement, status changes, listings
    - analytics: dashboard reports
    - notifications: Mock / SendGrid email
    - storage: Mock / Supabase menu image storage
"""
