"""Dashboard and reporting metrics over referrals."""
