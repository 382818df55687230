"""Shared configuration, logging, errors and parsing helpers."""
