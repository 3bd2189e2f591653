"""EstagioPro internship lifecycle and expiration alert service."""
