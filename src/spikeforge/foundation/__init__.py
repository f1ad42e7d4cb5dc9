"""Foundation layer: errors, configuration, logging and small utilities."""
