# Direction utilities: numeric conversion, tolerances and the angular ordering of 2D vectors.
from fractions import Fraction
import numpy as np

# Convert a (nested) sequence into a numpy array of numeric type N.
# Exact arrays hold Fractions (dtype=object), everything else is float64.
def asArray(x, exact=None):
	arr = np.asarray(x)
	if exact is None:
		exact = (arr.dtype == object)

	if exact:
		flat = [Fraction(v) for v in arr.ravel()]
		return np.array(flat, dtype=object).reshape(arr.shape)

	return arr.astype(float)

# Same as asArray, but always returns a one-dimensional vector.
def asVector(x, exact=None):
	arr = asArray(x, exact)
	if (arr.ndim == 0):
		arr = arr.reshape(1)
	return arr.ravel()

def isExact(v):
	return v.dtype == object

# Tolerance used for approximate comparisons in numeric type N.
def numericTolerance(exact):
	if exact:
		return Fraction(0)
	return np.finfo(float).eps

# Canonical basis vector sign*e_i in dimension n (i is zero-based).
def unitVector(i, n, sign=1, exact=False):
	if exact:
		e = np.array([Fraction(0)]*n, dtype=object)
		e[i] = Fraction(sign)
	else:
		e = np.zeros(n)
		e[i] = float(sign)
	return e

# Euclidean norm, always returned as a float.
def normOf(v):
	return float(np.sqrt(float(np.dot(v, v))))

# Rational upper bound of sqrt(x) for a non-negative Fraction, within a few
# ulps of the float square root.
def sqrtUpper(x):
	x = Fraction(x)
	r = Fraction(np.sqrt(float(x)))
	while (r*r < x):
		r = Fraction(np.nextafter(float(r), np.inf))
	return r

# Dot product that ignores the components where d is zero, so that infinite
# support vector entries in irrelevant components do not produce NaN.
def dotSafe(d, x):
	mask = np.array([di != 0 for di in d], dtype=bool)
	if not mask.any():
		return Fraction(0) if isExact(d) else 0.0
	return np.dot(d[mask], x[mask])

# Approximate equality in the max-norm, relative to the magnitude of the inputs.
def isApprox(a, b, tol):
	if (a.size == 0):
		return True

	diff = np.max(np.abs(a - b))
	if (tol == 0):
		return diff == 0

	scale = max(1.0, float(np.max(np.abs(a))), float(np.max(np.abs(b))))
	return float(diff) <= tol*scale

# Quadrant of a nonzero 2D vector: 0 for [0, pi/2), 1 for [pi/2, pi),
# 2 for [pi, 3pi/2) and 3 for [3pi/2, 2pi).
def quadrant(v):
	x, y = v[0], v[1]
	if (x > 0 and y >= 0):
		return 0
	if (x <= 0 and y > 0):
		return 1
	if (x < 0 and y <= 0):
		return 2
	if (x >= 0 and y < 0):
		return 3
	raise ValueError("the zero vector has no polar angle")

def cross2(u, v):
	return u[0]*v[1] - u[1]*v[0]

# Whether the polar angle of u is at most the polar angle of v, with the angle
# measured counter-clockwise from (1, 0). No trigonometry is involved.
def angleLe(u, v):
	qu = quadrant(u)
	qv = quadrant(v)
	if (qu != qv):
		return qu < qv

	# Both vectors are in the same quadrant, so they span less than pi.
	return cross2(u, v) >= 0

# Strict version of angleLe.
def angleLt(u, v):
	qu = quadrant(u)
	qv = quadrant(v)
	if (qu != qv):
		return qu < qv

	return cross2(u, v) > 0

# Whether u and v point in the same direction (positive multiples of each other).
def sameDirection(u, v, tol=0):
	if (quadrant(u) != quadrant(v)):
		return False
	c = cross2(u, v)
	if (tol == 0):
		return c == 0
	return abs(float(c)) <= tol*normOf(u)*normOf(v)
