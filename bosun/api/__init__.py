from bosun.api.node import Node
from bosun.api.session import Session
