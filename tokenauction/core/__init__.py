"""Auction core: state machine, claim ledger, transfer requests and host"""
