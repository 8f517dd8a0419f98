"""Small time and console helpers shared across plansmart."""
