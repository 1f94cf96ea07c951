# Errors raised by the lazy set library.

class LazySetError(Exception):
	pass

# The support function is +inf in the given direction.
class UnboundedDirectionError(LazySetError):
	def __init__(self, direction, message=None):
		self.direction = direction
		if message is None:
			message = "the set is unbounded in direction {}".format(list(direction))
		super().__init__(message)

# A local approximation whose points collapse cannot be refined further.
class DegenerateApproximation(LazySetError):
	pass

# The refinement loop hit its iteration guard before reaching the tolerance.
# The coarser overapproximation built so far is still valid and is attached.
class PrecisionNotAchievedError(LazySetError):
	def __init__(self, bestError, polygon, iterations):
		self.bestError = bestError
		self.polygon = polygon
		self.iterations = iterations
		super().__init__("precision not achieved after {} iterations; "
						 "best certified error is {}".format(iterations, bestError))

class DimensionMismatchError(LazySetError):
	def __init__(self, expected, got):
		self.expected = expected
		self.got = got
		super().__init__("dimension mismatch: expected {}, got {}".format(expected, got))

class UnsupportedOperationError(LazySetError):
	pass

# Exact (Fraction) and float operands cannot be mixed.
class NumericTypeMismatchError(LazySetError, TypeError):
	pass

class InfeasibleSetError(LazySetError):
	pass
