"""Held-out scoring (RMSE/MAE) and exhaustive hyperparameter grid search."""
