"""
vault_login — obtain HashiCorp Vault tokens through declarative login flows.

A login flow is described once as AuthenticationSteps and executed either
blocking (AuthenticationStepsExecutor) or on asyncio
(AuthenticationStepsOperator). Session managers cache the resulting token
and make sure concurrent callers trigger a single login.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
