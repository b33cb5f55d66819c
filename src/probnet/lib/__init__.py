from .smoking import smoking_net
from .wildcatter import wildcatter_net
