"""Preview deployments for npm projects on GitHub Enterprise Pages"""
