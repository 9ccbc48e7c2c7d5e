"""Bearer-token identity: the quiz trusts an upstream issuer for who the caller is."""
