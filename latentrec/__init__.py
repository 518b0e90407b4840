"""Latent-factor rating prediction (biased MF and SVD++) trained with SGD.

Core idea:
- Encode opaque (user, item) identifiers into dense integer ids (`Dataset`)
- Fit biased matrix factorization, with or without implicit feedback
- Pick hyperparameters by exhaustive grid search scored with held-out RMSE
"""
