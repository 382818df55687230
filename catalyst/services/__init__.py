"""Provider-backed services: AI generation, job search, email delivery."""
