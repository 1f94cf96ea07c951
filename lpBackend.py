# LP backend: support vectors of polyhedra given by constraints A x <= b.
import logging
import numpy as np
from scipy.optimize import linprog

from setErrors import LazySetError

logger = logging.getLogger(__name__)

# Maximize <d, x> subject to A x <= b with free variables.
# Returns ("optimal", x), ("unbounded", None) or ("infeasible", None).
def supportLp(d, A, b):
	d = np.asarray(d, dtype=float)
	A = np.asarray(A, dtype=float)
	b = np.asarray(b, dtype=float).ravel()
	n = d.size

	# Without constraints the problem is trivial.
	if (A.shape[0] == 0):
		if np.all(d == 0):
			return "optimal", np.zeros(n)
		return "unbounded", None

	res = linprog(-d, A_ub=A, b_ub=b, bounds=[(None, None)]*n, method="highs")

	if (res.status == 0):
		return "optimal", res.x
	elif (res.status == 3):
		logger.debug("LP unbounded in direction %s", d)
		return "unbounded", None
	elif (res.status == 2):
		logger.debug("LP infeasible for %d constraints", b.size)
		return "infeasible", None

	raise LazySetError("the LP solver failed: {}".format(res.message))
