"""Trip Wizard - step-by-step trip planning with a points paywall."""
