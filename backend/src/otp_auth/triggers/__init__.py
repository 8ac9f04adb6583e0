"""Cognito user pool trigger handlers for the email OTP flow."""
