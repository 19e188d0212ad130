"""Source readers that turn migration inputs into candidate records."""
