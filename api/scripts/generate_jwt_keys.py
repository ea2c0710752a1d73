#!/usr/bin/env python3
"""
Generate an RSA key pair for citizen JWTs and, optionally, a development
access token signed with it.
"""

import sys
import os
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.auth import AuthService, generate_key_pair


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--citizen-id', help="Also print an access token for this citizen")
    parser.add_argument('--email', help="Email claim for the access token")
    args = parser.parse_args(argv)

    private_key, public_key = generate_key_pair()

    print("=== JWT PRIVATE KEY ===")
    print(private_key)
    print("\n=== JWT PUBLIC KEY ===")
    print(public_key)

    print("\n=== Environment Variables ===")
    newline = "\\n"
    print(f'JWT_PRIVATE_KEY="{private_key.replace(chr(10), newline)}"')
    print(f'JWT_PUBLIC_KEY="{public_key.replace(chr(10), newline)}"')

    if args.citizen_id:
        auth_service = AuthService(private_key=private_key, public_key=public_key)
        print("\n=== Access Token ===")
        print(auth_service.generate_access_token(args.citizen_id, args.email))


if __name__ == "__main__":
    main()
