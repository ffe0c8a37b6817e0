"""Tagvault: tags with pictures in object storage."""
