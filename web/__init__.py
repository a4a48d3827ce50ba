"""Flask front end."""
