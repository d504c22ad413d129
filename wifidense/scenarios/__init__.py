"""Campagnes prédéfinies du banc Wi-Fi dense."""
