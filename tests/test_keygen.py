"""Tests for secret generation."""

import base64

from n8n_manager.core.keygen import generate_keys, generate_password, generate_secret


def test_secret_decodes_to_32_bytes():
    assert len(base64.b64decode(generate_secret(), validate=True)) == 32


def test_password_decodes_to_16_bytes():
    assert len(base64.b64decode(generate_password(), validate=True)) == 16


def test_keys_are_independent():
    keys = generate_keys()
    assert keys.encryption_key != keys.jwt_secret


def test_successive_pairs_differ():
    first = generate_keys()
    second = generate_keys()
    assert (first.encryption_key, first.jwt_secret) != (second.encryption_key, second.jwt_secret)
